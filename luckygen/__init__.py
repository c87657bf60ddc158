"""Eligibility and weighted prize draw engine for promotional sweepstakes."""
