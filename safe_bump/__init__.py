"""safe-bump: upgrade dependencies without breaking the test suite."""
