"""
API URL Configuration
"""
from django.urls import path, re_path

from .views import (
    analytics,
    auth,
    categories,
    coupons,
    customers,
    health,
    marketing,
    orders,
    products,
    ratings,
    staff,
    stock,
    subcategories,
)

app_name = 'api'


def export_path(resource, view, name):
    return re_path(rf'^{resource}/export/(?P<export_format>csv|json)$', view, name=name)


urlpatterns = [
    # Health check
    path('health/', health.HealthCheckView.as_view(), name='health'),

    # Authentication
    path('auth/register', auth.RegisterView.as_view(), name='auth-register'),
    path('auth/login', auth.LoginView.as_view(), name='auth-login'),
    path('auth/logout', auth.LogoutView.as_view(), name='auth-logout'),
    path('auth/me', auth.MeView.as_view(), name='auth-me'),
    path('auth/update-password', auth.UpdatePasswordView.as_view(), name='auth-update-password'),
    path('auth/forgot-password', auth.ForgotPasswordView.as_view(), name='auth-forgot-password'),

    # Staff
    path('staff', staff.StaffListView.as_view(), name='staff-list'),
    path('staff/<uuid:staff_id>', staff.StaffDetailView.as_view(), name='staff-detail'),
    path('staff/<uuid:staff_id>/toggle-active', staff.StaffToggleActiveView.as_view(), name='staff-toggle-active'),

    # Customers
    path('customers', customers.CustomerListView.as_view(), name='customer-list'),
    path('customers/login', customers.CustomerLoginView.as_view(), name='customer-login'),
    export_path('customers', customers.CustomerExportView.as_view(), name='customer-export'),
    path('customers/firebase/<str:firebase_uid>', customers.CustomerByFirebaseView.as_view(),
         name='customer-firebase'),
    path('customers/<uuid:customer_id>', customers.CustomerDetailView.as_view(), name='customer-detail'),
    path('customers/<uuid:customer_id>/orders', customers.CustomerOrdersView.as_view(), name='customer-orders'),

    # Categories
    path('categories', categories.CategoryListView.as_view(), name='category-list'),
    path('categories/dropdown', categories.CategoryDropdownView.as_view(), name='category-dropdown'),
    path('categories/bulk', categories.CategoryBulkView.as_view(), name='category-bulk'),
    path('categories/bulk/publish', categories.CategoryBulkPublishView.as_view(), name='category-bulk-publish'),
    export_path('categories', categories.CategoryExportView.as_view(), name='category-export'),
    path('categories/import/csv', categories.CategoryImportView.as_view(), name='category-import'),
    path('categories/<uuid:category_id>', categories.CategoryDetailView.as_view(), name='category-detail'),
    path('categories/<uuid:category_id>/toggle-published', categories.CategoryTogglePublishedView.as_view(),
         name='category-toggle-published'),
    path('categories/<uuid:category_id>/subcategories', categories.CategorySubcategoriesView.as_view(),
         name='category-subcategories'),
    path('categories/<uuid:category_id>/subcategories/<uuid:subcategory_id>',
         categories.CategorySubcategoryDetailView.as_view(), name='category-subcategory-detail'),
    path('categories/<uuid:category_id>/products', categories.CategoryProductsView.as_view(),
         name='category-products'),

    # Subcategories
    path('subcategories', subcategories.SubcategoryListView.as_view(), name='subcategory-list'),
    path('subcategories/<uuid:subcategory_id>', subcategories.SubcategoryDetailView.as_view(),
         name='subcategory-detail'),
    path('subcategories/<uuid:subcategory_id>/categories', subcategories.SubcategoryCategoriesView.as_view(),
         name='subcategory-categories'),

    # Products
    path('products', products.ProductListView.as_view(), name='product-list'),
    path('products/suggestions', products.ProductSuggestionsView.as_view(), name='product-suggestions'),
    path('products/bulk', products.ProductBulkDeleteView.as_view(), name='product-bulk-delete'),
    path('products/bulk-archive', products.ProductBulkArchiveView.as_view(), name='product-bulk-archive'),
    export_path('products', products.ProductExportView.as_view(), name='product-export'),
    path('products/import/csv', products.ProductImportView.as_view(), name='product-import'),
    path('products/<uuid:product_id>/toggle-published', products.ProductTogglePublishedView.as_view(),
         name='product-toggle-published'),
    path('products/<uuid:product_id>/toggle-archive', products.ProductToggleArchiveView.as_view(),
         name='product-toggle-archive'),
    path('products/<uuid:product_id>/ratings', ratings.ProductRatingsView.as_view(), name='product-ratings'),
    path('products/<str:lookup>', products.ProductDetailView.as_view(), name='product-detail'),

    # Stock
    path('stock', stock.StockListView.as_view(), name='stock-list'),
    path('stock/bulk-update', stock.StockBulkUpdateView.as_view(), name='stock-bulk-update'),
    path('stock/bulk-sync', stock.StockBulkSyncView.as_view(), name='stock-bulk-sync'),
    path('stock/alerts/low-stock', stock.LowStockAlertsView.as_view(), name='stock-low-stock-alerts'),
    export_path('stock', stock.StockExportView.as_view(), name='stock-export'),
    path('stock/<uuid:stock_id>', stock.StockDetailView.as_view(), name='stock-detail'),
    path('stock/<uuid:stock_id>/quantity', stock.StockQuantityView.as_view(), name='stock-quantity'),
    path('inventory-logs', stock.InventoryLogListView.as_view(), name='inventory-log-list'),

    # Orders
    path('orders', orders.OrderListView.as_view(), name='order-list'),
    path('orders/place-order', orders.PlaceOrderView.as_view(), name='order-place'),
    path('orders/my-orders', orders.MyOrdersView.as_view(), name='order-mine'),
    path('orders/check-purchase/<uuid:product_id>', orders.CheckPurchaseView.as_view(), name='order-check-purchase'),
    path('orders/track/<str:tracking_number>', orders.TrackOrderView.as_view(), name='order-track'),
    export_path('orders', orders.OrderExportView.as_view(), name='order-export'),
    path('orders/<uuid:order_id>', orders.OrderDetailView.as_view(), name='order-detail'),
    path('orders/<uuid:order_id>/status', orders.OrderStatusView.as_view(), name='order-status'),

    # Coupons
    path('coupons', coupons.CouponListView.as_view(), name='coupon-list'),
    path('coupons/validate', coupons.CouponValidateView.as_view(), name='coupon-validate'),
    export_path('coupons', coupons.CouponExportView.as_view(), name='coupon-export'),
    path('coupons/<uuid:coupon_id>', coupons.CouponDetailView.as_view(), name='coupon-detail'),
    path('coupons/<uuid:coupon_id>/toggle-published', coupons.CouponTogglePublishedView.as_view(),
         name='coupon-toggle-published'),

    # Ratings
    path('ratings', ratings.RatingSubmitView.as_view(), name='rating-submit'),
    path('ratings/my-reviews', ratings.MyRatingsView.as_view(), name='rating-mine'),
    path('ratings/admin', ratings.RatingAdminListView.as_view(), name='rating-admin-list'),
    path('ratings/admin/<uuid:rating_id>', ratings.RatingAdminDetailView.as_view(), name='rating-admin-detail'),

    # Storefront offers
    path('bulk-orders', marketing.BulkOrderListView.as_view(), name='bulk-order-list'),
    path('bulk-orders/admin', marketing.BulkOrderAdminListView.as_view(), name='bulk-order-admin-list'),
    path('bulk-orders/<uuid:pk>', marketing.BulkOrderDetailView.as_view(), name='bulk-order-detail'),
    path('special-offers', marketing.SpecialOfferListView.as_view(), name='special-offer-list'),
    path('special-offers/admin', marketing.SpecialOfferAdminListView.as_view(), name='special-offer-admin-list'),
    path('special-offers/<uuid:pk>', marketing.SpecialOfferDetailView.as_view(), name='special-offer-detail'),
    path('marquee-offers', marketing.MarqueeOfferListView.as_view(), name='marquee-offer-list'),
    path('marquee-offers/admin', marketing.MarqueeOfferAdminListView.as_view(), name='marquee-offer-admin-list'),
    path('marquee-offers/<uuid:pk>', marketing.MarqueeOfferDetailView.as_view(), name='marquee-offer-detail'),

    # Analytics
    path('analytics/<str:report>', analytics.AnalyticsReportView.as_view(), name='analytics-report'),
]
