"""
ForestWatch: environmental monitoring dashboard.

Entry point: forestwatch-dashboard  (python -m forestwatch.gui.main)

Provides:
- Record types for forest, waste, incentive and restoration data (models/)
- Linear map projection and animated viewport fitting (geo/)
- Layer classification, hit-testing and selection (layers/)
- Gemini-backed analysis service and the session store (analysis/)
- Demo scenarios, simulation ticks and seed datasets (data/)
- PES readiness / payment / benefit-sharing calculations (incentives)
- PyQt5 dashboard with the interactive map (gui/)
"""

__version__ = "0.4.0"
