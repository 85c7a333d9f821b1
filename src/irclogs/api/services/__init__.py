"""Ask session services: the protocol loop and admission control."""
