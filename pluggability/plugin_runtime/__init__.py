"""Runtime pieces that locate and import derivative modules on demand."""
