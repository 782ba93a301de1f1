"""dayblocks command-line interface."""
