"""Developer tools for the DFU serial transport."""
