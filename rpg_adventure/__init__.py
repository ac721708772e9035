"""Turn-based narrative adventure engine driven by a generative-text service."""
