"""vnpit — Vietnamese personal income tax engine and calculators."""
