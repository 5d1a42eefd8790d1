"""Radiative heating and heat diffusion."""
