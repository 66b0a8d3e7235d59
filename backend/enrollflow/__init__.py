"""EnrollFlow - document verification and registration progression backend."""

__version__ = "0.1.0"
