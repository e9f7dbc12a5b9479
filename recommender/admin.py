from django.contrib import admin

from .models import Author, Book, Genre, ReaderProfile, Recommendation, UserInteraction


@admin.register(Author)
class AuthorAdmin(admin.ModelAdmin):
    list_display = ("name", "normalized_name")
    search_fields = ("name", "normalized_name")
    ordering = ("name",)


@admin.register(Genre)
class GenreAdmin(admin.ModelAdmin):
    search_fields = ("name",)
    ordering = ("name",)


@admin.register(Book)
class BookAdmin(admin.ModelAdmin):
    list_display = ("title", "author", "average_rating", "rating_count", "view_count", "wishlist_count")
    search_fields = ("title", "author__name")
    list_filter = ("genres",)
    filter_horizontal = ("genres",)
    list_select_related = ("author",)
    ordering = ("-average_rating", "title")


@admin.register(ReaderProfile)
class ReaderProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "last_updated")
    search_fields = ("user__username",)


@admin.register(UserInteraction)
class UserInteractionAdmin(admin.ModelAdmin):
    list_display = ("user", "book", "interaction_type", "rating_value", "timestamp")
    list_filter = ("interaction_type",)
    search_fields = ("user__username", "book__title")
    raw_id_fields = ("user", "book")
    ordering = ("-timestamp",)


@admin.register(Recommendation)
class RecommendationAdmin(admin.ModelAdmin):
    list_display = ("kind", "source_id", "calculated_at", "expires_at")
    list_filter = ("kind",)
    search_fields = ("source_id",)
    readonly_fields = ("calculated_at",)
