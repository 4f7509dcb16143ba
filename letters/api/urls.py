from django.urls import path

from . import views

app_name = 'letters_api'

urlpatterns = [
    path('', views.letter_list, name='letter_list'),
    path('generate/', views.generate_draft, name='generate_draft'),
    path('<int:letter_id>/', views.letter_detail, name='letter_detail'),
    path('<int:letter_id>/status/', views.letter_update_status, name='letter_update_status'),
]
