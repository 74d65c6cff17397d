"""HTTP service exposing synchronous and streaming message processing."""
