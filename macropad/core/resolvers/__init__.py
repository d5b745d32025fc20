"""Per-schema-version configuration resolvers."""
