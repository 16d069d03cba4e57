"""Scoring engine: tokenizer, matcher, subscore calculators, red flags, confidence."""
