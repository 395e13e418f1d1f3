"""Real-time danmaku broadcast relay."""
