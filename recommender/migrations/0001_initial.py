import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Author",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(db_index=True, max_length=255, unique=True)),
                ("normalized_name", models.CharField(db_index=True, editable=False, max_length=255, unique=True)),
            ],
        ),
        migrations.CreateModel(
            name="Genre",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(db_index=True, max_length=100, unique=True)),
            ],
        ),
        migrations.CreateModel(
            name="Recommendation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[("content_based", "Content based"), ("collaborative", "Collaborative")],
                        db_index=True,
                        max_length=20,
                    ),
                ),
                ("source_id", models.CharField(db_index=True, max_length=64)),
                ("recommended_books", models.JSONField(default=list)),
                ("calculated_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("expires_at", models.DateTimeField(db_index=True)),
            ],
            options={
                "unique_together": {("kind", "source_id")},
            },
        ),
        migrations.CreateModel(
            name="Book",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                ("normalized_title", models.CharField(db_index=True, editable=False, max_length=200)),
                ("description", models.TextField(blank=True, default="", max_length=2000)),
                ("publisher", models.CharField(blank=True, default="", max_length=255)),
                ("publish_year", models.IntegerField(blank=True, null=True)),
                ("cover_image", models.CharField(default="/covers/default.jpg", max_length=255)),
                (
                    "average_rating",
                    models.FloatField(
                        db_index=True,
                        default=0.0,
                        validators=[
                            django.core.validators.MinValueValidator(0.0),
                            django.core.validators.MaxValueValidator(5.0),
                        ],
                    ),
                ),
                ("rating_count", models.PositiveIntegerField(default=0)),
                ("view_count", models.PositiveIntegerField(db_index=True, default=0)),
                ("wishlist_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "author",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="books", to="recommender.author"
                    ),
                ),
                ("genres", models.ManyToManyField(related_name="books", to="recommender.genre")),
            ],
            options={
                "ordering": ["id"],
                "unique_together": {("normalized_title", "author")},
            },
        ),
        migrations.CreateModel(
            name="ReaderProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("favorite_genres", models.JSONField(blank=True, default=list)),
                ("favorite_authors", models.JSONField(blank=True, default=list)),
                ("last_updated", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reader_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="UserInteraction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "interaction_type",
                    models.CharField(
                        choices=[("view", "View"), ("rating", "Rating"), ("wishlist", "Wishlist")],
                        db_index=True,
                        max_length=10,
                    ),
                ),
                (
                    "rating_value",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(5),
                        ],
                    ),
                ),
                ("time_on_page", models.PositiveIntegerField(blank=True, null=True)),
                ("timestamp", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("session_id", models.CharField(db_index=True, max_length=64)),
                (
                    "book",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="interactions",
                        to="recommender.book",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="interactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["user", "-timestamp"], name="interaction_user_time_idx"),
                    models.Index(fields=["book", "interaction_type"], name="interaction_book_type_idx"),
                    models.Index(fields=["user", "book", "interaction_type"], name="interaction_user_book_idx"),
                ],
            },
        ),
    ]
