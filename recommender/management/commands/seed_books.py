from django.core.management.base import BaseCommand
from django.db import transaction

from recommender.models import Author, Book, Genre

# (title, author, genres, publish_year, average_rating, rating_count, view_count)
SAMPLE_BOOKS = [
    ("Foundation", "Isaac Asimov", ["Science Fiction", "Fiction"], 1951, 4.5, 12500, 45000),
    ("Dune", "Frank Herbert", ["Science Fiction", "Fiction", "Adventure"], 1965, 4.7, 89000, 120000),
    ("1984", "George Orwell", ["Science Fiction", "Dystopia", "Politics"], 1949, 4.6, 150000, 200000),
    ("Brave New World", "Aldous Huxley", ["Science Fiction", "Dystopia", "Philosophy"], 1932, 4.3, 78000, 95000),
    ("Ender's Game", "Orson Scott Card", ["Science Fiction", "Fiction", "Adventure"], 1985, 4.4, 56000, 70000),
    ("The Lord of the Rings", "J.R.R. Tolkien", ["Fantasy", "Adventure", "Fiction"], 1954, 4.8, 210000, 260000),
    ("The Hobbit", "J.R.R. Tolkien", ["Fantasy", "Adventure", "Fiction"], 1937, 4.6, 180000, 210000),
    ("A Game of Thrones", "George R.R. Martin", ["Fantasy", "Fiction", "Adventure"], 1996, 4.5, 120000, 150000),
    ("The Name of the Wind", "Patrick Rothfuss", ["Fantasy", "Adventure", "Fiction"], 2007, 4.6, 65000, 80000),
    ("One Hundred Years of Solitude", "Gabriel García Márquez", ["Magical Realism", "Fiction", "Classics"], 1967, 4.7, 95000, 110000),
    ("Don Quixote", "Miguel de Cervantes", ["Classics", "Adventure", "Fiction"], 1605, 4.4, 60000, 75000),
    ("Pride and Prejudice", "Jane Austen", ["Romance", "Classics", "Fiction"], 1813, 4.5, 140000, 160000),
    ("Crime and Punishment", "Fyodor Dostoevsky", ["Classics", "Fiction", "Psychological"], 1866, 4.6, 70000, 85000),
    ("Moby Dick", "Herman Melville", ["Adventure", "Classics", "Fiction"], 1851, 3.9, 40000, 52000),
    ("The Da Vinci Code", "Dan Brown", ["Mystery", "Suspense", "Fiction"], 2003, 3.9, 110000, 140000),
    ("Murder on the Orient Express", "Agatha Christie", ["Mystery", "Suspense", "Fiction"], 1934, 4.3, 66000, 79000),
    ("The Silence of the Lambs", "Thomas Harris", ["Suspense", "Thriller", "Fiction"], 1988, 4.4, 48000, 61000),
    ("Gone Girl", "Gillian Flynn", ["Suspense", "Thriller", "Fiction"], 2012, 4.1, 99000, 118000),
    ("Sapiens", "Yuval Noah Harari", ["History", "Nonfiction", "Science"], 2011, 4.5, 130000, 170000),
    ("Man's Search for Meaning", "Viktor Frankl", ["Psychology", "Nonfiction", "Philosophy"], 1946, 4.7, 72000, 90000),
    ("Atomic Habits", "James Clear", ["Self-Help", "Nonfiction", "Psychology"], 2018, 4.6, 115000, 150000),
    ("Thinking, Fast and Slow", "Daniel Kahneman", ["Psychology", "Nonfiction", "Science"], 2011, 4.4, 58000, 72000),
    ("Educated", "Tara Westover", ["Biography", "Nonfiction", "Memoir"], 2018, 4.5, 87000, 101000),
    ("The House of the Spirits", "Isabel Allende", ["Magical Realism", "Fiction", "Drama"], 1982, 4.4, 45000, 56000),
    ("Like Water for Chocolate", "Laura Esquivel", ["Magical Realism", "Romance", "Fiction"], 1989, 4.2, 38000, 47000),
]


class Command(BaseCommand):
    help = "Seeds the catalog with a sample set of books, authors and genres."

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(f"Seeding {len(SAMPLE_BOOKS)} books...")
        created_count = 0

        for title, author_name, genre_names, year, rating, rating_count, view_count in SAMPLE_BOOKS:
            author, _ = Author.objects.get_or_create(name=author_name)
            book, created = Book.objects.get_or_create(
                normalized_title=Book._normalize_title(title),
                author=author,
                defaults={
                    "title": title,
                    "publish_year": year,
                    "average_rating": rating,
                    "rating_count": rating_count,
                    "view_count": view_count,
                },
            )
            if created:
                created_count += 1
                book.genres.set([Genre.objects.get_or_create(name=name)[0] for name in genre_names])

        self.stdout.write(self.style.SUCCESS(f"Seeded {created_count} new books ({len(SAMPLE_BOOKS) - created_count} already present)."))
