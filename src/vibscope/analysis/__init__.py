"""Signal analysis utilities (units, windowing, FFT, peaks and features).

Every module here operates on NumPy arrays of sensor samples and stays free of
network and plotting dependencies, so the same helpers serve the chart
pipeline, the command-line plotter and the tests.
"""
