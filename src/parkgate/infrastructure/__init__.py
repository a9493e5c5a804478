"""Infrastructure layer: configuration, wiring, messaging and receipt archive"""
