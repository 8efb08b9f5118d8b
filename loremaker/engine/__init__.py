"""Pure character data engine: coercion, mapping, canonicalisation, seeding and queries."""
