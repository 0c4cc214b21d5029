from django.urls import path
from . import views

urlpatterns = [
    path('returns/', views.return_list_create, name='return-list-create'),
    path('returns/<int:pk>/', views.return_detail, name='return-detail'),
    path('returns/<int:pk>/approve/', views.return_approve, name='return-approve'),
    path('returns/<int:pk>/reject/', views.return_reject, name='return-reject'),
    path('returns/<int:pk>/refund/', views.return_refund, name='return-refund'),
]
