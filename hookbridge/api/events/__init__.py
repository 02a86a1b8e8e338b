"""Webhook ingestion resource."""
