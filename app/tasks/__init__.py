"""Out-of-band jobs run by `scripts/worker.py`."""
