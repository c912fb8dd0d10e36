from rich_text_extraction.cli import main

if __name__ == "__main__":
    main()
