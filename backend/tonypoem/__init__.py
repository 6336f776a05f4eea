"""Tony Poem Foundation website and content management backend."""

__version__ = "1.0.0"
