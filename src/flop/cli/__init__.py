"""FLOP command line interface."""
