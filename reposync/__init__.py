"""reposync: propagate files from a source repository to many targets."""

__version__ = "0.1.0"
