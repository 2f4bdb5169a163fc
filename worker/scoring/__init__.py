"""Metric builders and the shared score calculator."""

# Use explicit imports:
# from worker.scoring.calculator import calculate_score
# from worker.scoring.site_performance import build_site_performance
