from django.urls import path
from messaging import views

app_name = 'messaging'

urlpatterns = [
    path('send', views.send_sms, name='send'),
    path('bulk', views.send_bulk_sms, name='bulk'),
    path('messages', views.message_list, name='message_list'),
    path('messages/<uuid:message_id>', views.message_detail, name='message_detail'),
    path('messages/<uuid:message_id>/cancel', views.cancel_message, name='cancel_message'),
    path('batches/<str:batch_id>', views.batch_detail, name='batch_detail'),
    path('analytics', views.analytics, name='analytics'),
    path('pricing', views.pricing_list, name='pricing'),
    path('delivery-callback', views.delivery_callback, name='delivery_callback'),
]
