"""In-group command handling."""
from .interpreter import Action, CommandInterpreter, Outcome, render_mentions

__all__ = ["Action", "CommandInterpreter", "Outcome", "render_mentions"]
