"""TransTerm - English/Korean terminology glossary.

The core is the ranked list synchronizer that keeps a term's translation
order, its preferred translation and the stored sort order in step.
"""

__version__ = "0.1.0"
