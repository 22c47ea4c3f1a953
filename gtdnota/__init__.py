"""gtdnota - GTD task engine where tasks, projects and contexts are all notas."""

__version__ = "0.1.0"
