ROLE_ADMIN = 'admin'
ROLE_OWNER = 'owner'
ROLE_STORE_MANAGER = 'store_manager'
ROLE_CASHIER = 'cashier'
ROLE_DRIVER = 'driver'
ROLE_CUSTOMER = 'customer'

USER_ROLES = [ROLE_ADMIN, ROLE_OWNER, ROLE_STORE_MANAGER, ROLE_CASHIER, ROLE_DRIVER, ROLE_CUSTOMER]

RESTAURANT_STATUSES = ['pending_verification', 'active', 'suspended']
ORDER_STATUSES = ['pending', 'preparing', 'ready', 'delivered', 'cancelled', 'completed']
DATA_MODEL_CATEGORIES = ['core', 'extended']

RESTAURANT_IMAGE_FIELDS = {
    'logo': 'logo_url',
    'cover': 'cover_page_url'
}

RESTAURANT_IMAGES_FOLDER = 'restaurant-images'
PROFILE_IMAGES_FOLDER = 'profile-images'

ALLOWED_IMAGE_CONTENT_TYPES = ['image/jpeg', 'image/png', 'image/gif', 'image/webp']

DEFAULT_TRACKING_EVENTS_LIMIT = 20
DEFAULT_RECENT_RESTAURANTS_LIMIT = 5
DEFAULT_POPULAR_DATA_MODELS_LIMIT = 5
TOP_RESTAURANTS_LIMIT = 5
METRICS_COMPARISON_DAYS = 30

GENERIC_ERROR_MESSAGE = 'An unexpected error occurred. Please try again.'

DOCUMENTATION_CATEGORIES = [
    'Getting Started',
    'Restaurant Management',
    'Order Processing',
    'Driver Management',
    'User Management',
    'Analytics'
]

DOCUMENTATION_FILES = {
    'getting-started': {
        'title': 'Getting Started with BiziData',
        'description': 'Learn how to set up and start using the BiziData dashboard',
        'category': 'Getting Started',
        'tags': ['setup', 'introduction', 'basics']
    },
    'restaurant-management': {
        'title': 'Restaurant Management Guide',
        'description': 'Comprehensive guide for managing restaurants in the system',
        'category': 'Restaurant Management',
        'tags': ['restaurant', 'management', 'setup']
    },
    'order-processing': {
        'title': 'Order Processing Workflow',
        'description': 'Step-by-step guide for handling orders from receipt to delivery',
        'category': 'Order Processing',
        'tags': ['orders', 'workflow', 'process']
    },
    'driver-management': {
        'title': 'Driver Management',
        'description': 'Guide for adding and managing delivery drivers',
        'category': 'Driver Management',
        'tags': ['drivers', 'delivery', 'management']
    },
    'user-management': {
        'title': 'User Roles and Permissions',
        'description': 'Detailed explanation of different user roles and their permissions',
        'category': 'User Management',
        'tags': ['users', 'roles', 'permissions', 'security']
    },
    'analytics': {
        'title': 'Analytics Dashboard Guide',
        'description': 'How to use and interpret the analytics dashboard',
        'category': 'Analytics',
        'tags': ['analytics', 'reporting', 'metrics', 'data']
    }
}

DEFAULT_DATA_MODELS = [
    {
        'name': 'Restaurant Profile',
        'description': 'Core restaurant information including name, address, and business details',
        'category': 'core',
        'fields': 12,
        'usage_count': 842
    },
    {
        'name': 'Menu Items',
        'description': 'Food and beverage items with pricing, descriptions, and categories',
        'category': 'core',
        'fields': 15,
        'usage_count': 756
    },
    {
        'name': 'Order Management',
        'description': 'Order processing, status tracking, and fulfillment information',
        'category': 'core',
        'fields': 18,
        'usage_count': 621
    },
    {
        'name': 'Customer Profiles',
        'description': 'Customer information, preferences, and order history',
        'category': 'extended',
        'fields': 14,
        'usage_count': 512
    },
    {
        'name': 'Delivery Tracking',
        'description': 'Real-time delivery status, driver assignment, and location tracking',
        'category': 'extended',
        'fields': 10,
        'usage_count': 498
    }
]

DRIVER_STATUS_OFFLINE = 'offline'
DRIVER_STATUS_AVAILABLE = 'available'
TRACKING_EVENT_TYPES = ['location_update', 'status_change', 'order_assigned', 'order_delivered']
DEFAULT_SIMULATION_INTERVAL_SECONDS = 5
