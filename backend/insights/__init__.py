"""Per-user event metrics and their plain-language explanations."""
