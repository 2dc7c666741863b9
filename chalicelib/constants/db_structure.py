# Values a record gets on read when the stored document lacks them

USER = {
    'id_': None,
    'name': None,
    'email': None,
    'phone': None,
    'role': 'customer',
    'is_verified': False,
    'rating': 0,
    'completed_orders': 0,
    'avatar_url': None,
    'vehicle_type': None,
    'current_suburb': None,
    'address': None,
    'created_at': None,
    'updated_at': None
}

RESTAURANT = {
    'id_': None,
    'name': 'Unnamed Restaurant',
    'description': None,
    'cuisine': 'Various',
    'rating': 0,
    'address': None,
    'status': 'pending_verification',
    'owner_id': None,
    'phone': None,
    'email': None,
    'price_range': None,
    'opening_hours': None,
    'logo_url': None,
    'cover_page_url': None,
    'created_by': None,
    'created_at': None,
    'updated_at': None
}

DATA_MODEL = {
    'id_': None,
    'name': 'Unnamed Model',
    'description': '',
    'category': 'core',
    'fields': 0,
    'usage_count': 0,
    'created_at': None,
    'updated_at': None
}

ORDER = {
    'id_': None,
    'restaurant': None,
    'customer': None,
    'items': [],
    'total': 0,
    'status': 'pending',
    'driver_id': None,
    'delivery_time': None,
    'created_at': None,
    'updated_at': None
}

DOCUMENTATION = {
    'id_': None,
    'title': 'Untitled',
    'description': '',
    'content': '',
    'category': 'Getting Started',
    'tags': [],
    'url': None,
    'created_at': None,
    'updated_at': None
}

TRACKING_EVENT = {
    'id_': None,
    'type': 'location_update',
    'driver': None,
    'order': None,
    'location': None,
    'status': None,
    'timestamp': None,
    'created_at': None,
    'updated_at': None
}

DRIVER_LOCATION = {
    'id_': None,
    'driver_id': None,
    'name': 'Unknown Driver',
    'avatar_url': None,
    'location': None,
    'status': 'available',
    'vehicle': None,
    'current_order': None,
    'last_updated': None,
    'created_at': None,
    'updated_at': None
}
