"""HelmetLink: state sync and navigation assist for a smart-helmet companion app."""

__version__ = "0.1.0"
