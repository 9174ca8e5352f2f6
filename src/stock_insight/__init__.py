"""stock-insight package.

Turns the analysis payloads of a stock-research backend into display-ready
facts: quote figures mined from AI narrative text, a normalized market cap,
per-article news sentiment and label counts.  The engine is pure and
synchronous; only :mod:`stock_insight.client` talks to the network.
"""

__all__: list[str] = []
