"""
Data Analysis Workshop - narrated lessons on statistical and ML libraries

Modules:
- chapter0: Price Series Objects and Contracts
- chapter1: Configuration, Ingestion, Preparation & Validation
- chapter2: Linear / Polynomial Regression on Fund Prices
- chapter3: ARIMA Forecasting (stationarity, order selection, backtesting)
- chapter4: Toxicity Classification (pipelines, cross-validation, ROC)
- plotting: matplotlib figures shared by the notebooks
- cli: Typer CLI that runs each lesson headless
"""

__version__ = "0.1.0"
