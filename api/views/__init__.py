"""
API Views for the Bazaar commerce backend

One module per resource:
- auth, staff, customers: accounts and sessions
- categories, subcategories, products: catalog
- stock: inventory levels, alerts and the inventory log
- orders, coupons: sales
- ratings: product reviews
- marketing: bulk orders, special offers and marquee offers
- analytics: sales reports
- health: system status
"""
