"""Session, storage and level-curve services sitting between the engine and the Flask surface."""
