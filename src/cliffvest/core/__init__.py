"""Core components: fixed-point math, addresses, errors, config and contracts."""
