"""
PV Test Manager: experiment lifecycle, measurements and alerts for
photovoltaic test benches.
"""
__version__ = "1.0.0"
