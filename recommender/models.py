import re

from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone


class Genre(models.Model):
    name = models.CharField(max_length=100, unique=True, db_index=True)

    def __str__(self):
        return self.name


class Author(models.Model):
    name = models.CharField(max_length=255, unique=True, db_index=True)
    normalized_name = models.CharField(max_length=255, unique=True, db_index=True, editable=False)

    def save(self, *args, **kwargs):
        self.normalized_name = self._normalize(self.name)
        super().save(*args, **kwargs)

    @staticmethod
    def _normalize(name):
        name = name.lower()
        name = re.sub(r"[^\w\s]", "", name)
        name = re.sub(r"\s+", "", name)
        return name

    def __str__(self):
        return self.name


class Book(models.Model):
    title = models.CharField(max_length=200)
    author = models.ForeignKey(Author, on_delete=models.CASCADE, related_name="books")
    normalized_title = models.CharField(max_length=200, db_index=True, editable=False)

    description = models.TextField(max_length=2000, blank=True, default="")
    publisher = models.CharField(max_length=255, blank=True, default="")
    publish_year = models.IntegerField(null=True, blank=True)
    cover_image = models.CharField(max_length=255, default="/covers/default.jpg")
    genres = models.ManyToManyField(Genre, related_name="books")

    average_rating = models.FloatField(
        default=0.0, db_index=True, validators=[MinValueValidator(0.0), MaxValueValidator(5.0)]
    )
    rating_count = models.PositiveIntegerField(default=0)
    view_count = models.PositiveIntegerField(default=0, db_index=True)
    wishlist_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("normalized_title", "author")
        ordering = ["id"]

    def save(self, *args, **kwargs):
        self.normalized_title = self._normalize_title(self.title)
        super().save(*args, **kwargs)

    @staticmethod
    def _normalize_title(title):
        title = title.lower()
        title = re.sub(r"[\(\[].*?[\)\]]", "", title)
        title = re.sub(r"[^\w\s]", "", title)
        title = re.sub(r"\s+", "", title)
        return title.strip()

    def __str__(self):
        return f'"{self.title}" by {self.author.name}'


class ReaderProfile(models.Model):
    """Declared reading preferences used by the preference matcher."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="reader_profile")
    favorite_genres = models.JSONField(default=list, blank=True)
    favorite_authors = models.JSONField(default=list, blank=True)
    last_updated = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Preferences for {self.user.username}"


class UserInteraction(models.Model):
    """Append-only log of what a user did with a book."""

    VIEW = "view"
    RATING = "rating"
    WISHLIST = "wishlist"
    INTERACTION_TYPES = [
        (VIEW, "View"),
        (RATING, "Rating"),
        (WISHLIST, "Wishlist"),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="interactions")
    book = models.ForeignKey(Book, on_delete=models.CASCADE, related_name="interactions")
    interaction_type = models.CharField(max_length=10, choices=INTERACTION_TYPES, db_index=True)
    rating_value = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    time_on_page = models.PositiveIntegerField(null=True, blank=True)  # seconds
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    session_id = models.CharField(max_length=64, db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "-timestamp"], name="interaction_user_time_idx"),
            models.Index(fields=["book", "interaction_type"], name="interaction_book_type_idx"),
            models.Index(fields=["user", "book", "interaction_type"], name="interaction_user_book_idx"),
        ]

    def clean(self):
        if self.interaction_type == self.RATING and self.rating_value is None:
            raise ValidationError({"rating_value": "A rating between 1 and 5 is required for rating interactions."})
        if self.interaction_type == self.VIEW and self.time_on_page is None:
            raise ValidationError({"time_on_page": "Time on page is required for view interactions."})

    def __str__(self):
        return f"{self.user.username} {self.interaction_type} {self.book.title}"


class Recommendation(models.Model):
    """
    A precomputed, ranked recommendation list.

    `source_id` is a book id for content-based lists and a user id for
    collaborative ones. Rows past `expires_at` are treated as absent and
    removed by the purge job.
    """

    CONTENT_BASED = "content_based"
    COLLABORATIVE = "collaborative"
    KINDS = [
        (CONTENT_BASED, "Content based"),
        (COLLABORATIVE, "Collaborative"),
    ]

    kind = models.CharField(max_length=20, choices=KINDS, db_index=True)
    source_id = models.CharField(max_length=64, db_index=True)
    # [{"book_id": int, "score": float, "reason": str}, ...] in rank order
    recommended_books = models.JSONField(default=list)
    calculated_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        unique_together = ("kind", "source_id")

    def __str__(self):
        return f"{self.kind} recommendations for {self.source_id}"


@receiver(post_save, sender=User)
def create_reader_profile(sender, instance, created, **kwargs):
    if created:
        ReaderProfile.objects.create(user=instance)
