"""hotdrop core: blob store, deployment builder, registry and loader."""
