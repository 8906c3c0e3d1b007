"""sitepush: deploy local web projects through the Vercel, Netlify or Firebase CLIs."""

__version__ = "0.3.0"
