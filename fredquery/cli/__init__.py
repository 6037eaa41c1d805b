"""FredQuery command line interface."""
