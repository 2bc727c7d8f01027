"""Pure domain rules: capabilities and checkout states."""
