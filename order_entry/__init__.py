"""
Order Entry Service
===================

Catalog indexing, product lookup and order-line computation for the
order-entry spreadsheet tool.

Features:
- Heuristic column resolution for loosely structured catalog spreadsheets
- Substring search and exact-code lookup over the loaded catalog
- Order book with incrementally maintained subtotals and totals
- Spreadsheet export of the finished order
- Optional remote catalog backend over HTTP

"""

__version__ = "1.0.0"
