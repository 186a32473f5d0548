"""nftmarket command-line interface."""
