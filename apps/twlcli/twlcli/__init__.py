"""twl command line interface."""
