"""Daisyworld - a climate/biosphere feedback toy on a 2D grid."""
