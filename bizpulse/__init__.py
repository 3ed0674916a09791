"""Business registry verification, content generation and quality grading pipeline."""
