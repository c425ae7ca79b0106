"""Job pricing and quotes for 3D printing shops."""
