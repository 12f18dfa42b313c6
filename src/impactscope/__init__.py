"""ImpactScope - what else in this project could break?"""

__version__ = "0.1.0"
