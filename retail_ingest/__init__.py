"""Ingestion of retail report exports: parsing, idempotent recording and cost valuation."""
