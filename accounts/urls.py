from django.urls import path
from accounts import views

app_name = 'accounts'

urlpatterns = [
    path('balance', views.balance, name='balance'),
    path('transactions', views.transactions, name='transactions'),
    path('sender-ids', views.sender_ids, name='sender_ids'),
]
