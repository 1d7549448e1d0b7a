"""Core command pipeline: model, parser, registry, executor and LLM collaborator."""
