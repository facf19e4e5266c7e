"""Pure domain core: FIX codec, validation, orders and allocation."""
