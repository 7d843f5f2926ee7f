"""
Terminal delivery: rich rendering and the interactive learn session.

Components:
- visuals: Panels, tables and trees for every CLI screen
- LearnPresenter: Keyboard-driven front end for LearnSessionEngine
"""

from .learn_presenter import LearnPresenter

__all__ = [
    "LearnPresenter",
]
