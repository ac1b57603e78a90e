"""Live-synced kanban boards over a hosted Supabase backend."""
