"""Repository layer for the telesales CRM.

Provides CRUD, dedup, and query methods for core CRM entities:
- users: get, get_by_username, create, update, list_agents
- products: list_products, get, get_by_sku, create, update
- calls: list_calls, get, create, update, assign_to_agent, check_duplicate,
         list_transactions
- history: add, list_for_call
- analytics: get_dashboard_stats, get_agent_performance
"""
