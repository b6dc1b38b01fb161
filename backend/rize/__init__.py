"""Rize — device session and personal lists backend."""
