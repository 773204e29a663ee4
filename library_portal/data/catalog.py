# library_portal/data/catalog.py
from library_portal.models.book import Book

BOOKS = [
    Book(1, "The Great Gatsby", "F. Scott Fitzgerald", "978-0-7432-7356-5", "Classic Literature",
         "9780743273565", 1925, "A classic American novel set in the Jazz Age"),
    Book(2, "To Kill a Mockingbird", "Harper Lee", "978-0-06-112008-4", "Classic Literature",
         "9780061120084", 1960, "A gripping tale of racial injustice and childhood innocence"),
    Book(3, "1984", "George Orwell", "978-0-452-28423-4", "Dystopian Fiction",
         "9780452284234", 1949, "A dystopian social science fiction novel"),
    Book(4, "Pride and Prejudice", "Jane Austen", "978-0-14-143951-8", "Romance",
         "9780141439518", 1813, "A romantic novel of manners"),
    Book(5, "The Catcher in the Rye", "J.D. Salinger", "978-0-316-76948-0", "Coming of Age",
         "9780316769480", 1951, "A controversial novel about teenage rebellion"),
    Book(6, "Animal Farm", "George Orwell", "978-0-452-28424-1", "Political Satire",
         "9780452284241", 1945, "An allegorical novella about farm animals"),
    Book(7, "Brave New World", "Aldous Huxley", "978-0-06-085052-4", "Dystopian Fiction",
         "9780060850524", 1932, "A dystopian novel about a technologically advanced future"),
    Book(8, "Lord of the Flies", "William Golding", "978-0-571-05686-2", "Adventure Fiction",
         "9780571056862", 1954, "A novel about British boys stranded on an uninhabited island"),
    Book(9, "The Hobbit", "J.R.R. Tolkien", "978-0-547-92822-7", "Fantasy",
         "9780547928227", 1937, "A fantasy adventure novel"),
    Book(10, "Harry Potter and the Philosopher's Stone", "J.K. Rowling", "978-0-7475-3269-9", "Fantasy",
         "9780747532699", 1997, "The first book in the Harry Potter series"),
]
