"""Exchange bindings built on the declarative REST engine."""
