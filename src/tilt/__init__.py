"""Tilt - infinite-scroll problem feed backend."""
