from django.urls import path

from blog import views

content_urlpatterns = [
    path("blog/", views.blog_collection, name="blog_collection"),
    path("blog/recover/", views.recover_blog, name="blog_recover"),
    path("blog/publish/", views.publish_blog, name="blog_publish"),
    path("blog/unpublish/", views.unpublish_blog, name="blog_unpublish"),
    path("blog/featured/", views.featured_blog, name="blog_featured"),
    path("blog/like/", views.like_blog, name="blog_like"),
    path("blog/unlike/", views.unlike_blog, name="blog_unlike"),
    path("categories/popular/", views.popular_categories, name="popular_categories"),
    path("comments/", views.comments, name="comments"),
    path("drafts/", views.drafts, name="drafts"),
    path("drafts/publish/", views.publish_draft, name="draft_publish"),
    path("authors/", views.authors, name="authors"),
]

admin_urlpatterns = [
    path("authors/", views.admin_authors, name="admin_authors"),
    path("posts/", views.admin_posts, name="admin_posts"),
    path("users/", views.admin_users, name="admin_users"),
]
