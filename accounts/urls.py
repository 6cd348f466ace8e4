from django.urls import path

from .views import MeView, UserDeactivateView, UserDetailView, UserListView, UserReactivateView

app_name = "accounts"

urlpatterns = [
    path("me/", MeView.as_view(), name="me"),
    path("users/", UserListView.as_view(), name="users"),
    path("users/<int:user_id>/", UserDetailView.as_view(), name="user-detail"),
    path("users/<int:user_id>/deactivate/", UserDeactivateView.as_view(), name="user-deactivate"),
    path("users/<int:user_id>/reactivate/", UserReactivateView.as_view(), name="user-reactivate"),
]
