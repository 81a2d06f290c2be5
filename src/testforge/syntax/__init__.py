"""C# syntax model package."""
