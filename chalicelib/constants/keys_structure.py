users_pk = 'users'
users_sk = '{user_id}'

restaurants_pk = 'restaurants'
restaurants_sk = '{restaurant_id}'

data_models_pk = 'data_models'
data_models_sk = '{data_model_id}'

orders_pk = 'orders'
orders_sk = '{order_id}'

documentation_pk = 'documentation'
documentation_sk = '{documentation_id}'

# sortkey starts with the event time, so the partition reads in time order
tracking_events_pk = 'tracking_events'
tracking_events_sk = '{timestamp}#{event_id}'

driver_locations_pk = 'driver_locations'
driver_locations_sk = '{driver_id}'
