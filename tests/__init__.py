"""
Workshop Test Suite

Tests organized by chapter:
- test_ch0_objects.py: price frame contract
- test_ch1_fail_loud.py: configuration, ingest, prepare and validation gates
- test_ch2_regression.py: polynomial / lag regression and degree selection
- test_ch3_arima.py: stationarity, order selection, forecast, diagnostics
- test_ch3_backtesting.py: backtesting windows and leakage checks
- test_ch3_metrics.py: forecast metrics (NaN handling)
- test_ch4_classification.py: pipelines, cross-validation, ROC
- test_io_utils.py: lesson artifact writes
- test_smoke.py: lesson runners and CLI on synthetic data
"""
