"""Release history store with duplicate and smart episode guards."""

__version__ = "0.1.0"
