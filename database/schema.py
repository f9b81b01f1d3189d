SCHEMA = """
CREATE EXTENSION IF NOT EXISTS pgcrypto;

CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    email TEXT NOT NULL UNIQUE,
    provider TEXT NOT NULL CHECK (provider IN ('google', 'apple')),
    provider_sub TEXT NOT NULL,
    expo_push_token TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    UNIQUE (provider, provider_sub)
);

CREATE TABLE IF NOT EXISTS relationships (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS relationship_members (
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    role TEXT NOT NULL DEFAULT 'member' CHECK (role IN ('owner', 'member')),
    status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'pending')),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (relationship_id, user_id)
);

CREATE INDEX IF NOT EXISTS relationship_members_user_idx ON relationship_members(user_id);

CREATE TABLE IF NOT EXISTS relationship_invites (
    code TEXT PRIMARY KEY,
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    created_by UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    target_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
    target_email TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    expires_at TIMESTAMPTZ NOT NULL,
    redeemed_by UUID REFERENCES users(id) ON DELETE SET NULL,
    redeemed_at TIMESTAMPTZ
);

CREATE TABLE IF NOT EXISTS entries (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    created_by_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    occurred_at TIMESTAMPTZ NOT NULL,
    body TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS entries_timeline_idx
    ON entries(relationship_id, occurred_at DESC, created_at DESC, id DESC);

CREATE TABLE IF NOT EXISTS entry_edits (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    entry_id UUID NOT NULL REFERENCES entries(id) ON DELETE CASCADE,
    edited_by_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    edited_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    previous_title TEXT,
    new_title TEXT,
    previous_body TEXT,
    new_body TEXT,
    previous_occurred_at TIMESTAMPTZ,
    new_occurred_at TIMESTAMPTZ
);

CREATE TABLE IF NOT EXISTS entry_media (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    entry_id UUID NOT NULL REFERENCES entries(id) ON DELETE CASCADE,
    blob_key TEXT NOT NULL,
    kind TEXT NOT NULL DEFAULT 'photo',
    width INTEGER NOT NULL,
    height INTEGER NOT NULL,
    x REAL NOT NULL DEFAULT 0,
    y REAL NOT NULL DEFAULT 0,
    scale REAL NOT NULL DEFAULT 1,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS scrapbooks (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    created_by_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    cover_blob_key TEXT,
    cover_width INTEGER,
    cover_height INTEGER,
    details_date DATE,
    details_place TEXT,
    details_place_id TEXT,
    details_mood_tags TEXT[],
    details_review TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS scrapbooks_relationship_idx ON scrapbooks(relationship_id, created_at DESC);

CREATE TABLE IF NOT EXISTS scrapbook_pages (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    scrapbook_id UUID NOT NULL REFERENCES scrapbooks(id) ON DELETE CASCADE,
    created_by_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    page_index INTEGER NOT NULL CHECK (page_index >= 1),
    details_date DATE,
    details_place TEXT,
    details_place_id TEXT,
    details_mood_tags TEXT[],
    details_review TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    UNIQUE (scrapbook_id, page_index)
);

CREATE TABLE IF NOT EXISTS scrapbook_page_media (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    scrapbook_id UUID NOT NULL REFERENCES scrapbooks(id) ON DELETE CASCADE,
    page_id UUID NOT NULL REFERENCES scrapbook_pages(id) ON DELETE CASCADE,
    created_by_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    blob_key TEXT NOT NULL,
    kind TEXT NOT NULL DEFAULT 'photo',
    width INTEGER NOT NULL,
    height INTEGER NOT NULL,
    x REAL NOT NULL DEFAULT 0,
    y REAL NOT NULL DEFAULT 0,
    scale REAL NOT NULL DEFAULT 1,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS scrapbook_page_stickers (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    scrapbook_id UUID NOT NULL REFERENCES scrapbooks(id) ON DELETE CASCADE,
    page_id UUID NOT NULL REFERENCES scrapbook_pages(id) ON DELETE CASCADE,
    created_by_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    kind TEXT NOT NULL,
    x REAL NOT NULL DEFAULT 0,
    y REAL NOT NULL DEFAULT 0,
    scale REAL NOT NULL DEFAULT 1,
    rotation REAL NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS scrapbook_page_texts (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    scrapbook_id UUID NOT NULL REFERENCES scrapbooks(id) ON DELETE CASCADE,
    page_id UUID NOT NULL REFERENCES scrapbook_pages(id) ON DELETE CASCADE,
    created_by_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    text TEXT NOT NULL DEFAULT 'Text',
    font TEXT NOT NULL DEFAULT 'hand',
    color TEXT NOT NULL DEFAULT '#2E2A27',
    x REAL NOT NULL DEFAULT 0,
    y REAL NOT NULL DEFAULT 0,
    scale REAL NOT NULL DEFAULT 1,
    rotation REAL NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS scrapbook_page_notes (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    scrapbook_id UUID NOT NULL REFERENCES scrapbooks(id) ON DELETE CASCADE,
    page_id UUID NOT NULL REFERENCES scrapbook_pages(id) ON DELETE CASCADE,
    text TEXT NOT NULL DEFAULT '',
    color TEXT NOT NULL DEFAULT 'yellow' CHECK (color IN ('yellow', 'pink', 'blue', 'purple')),
    x REAL NOT NULL DEFAULT 0,
    y REAL NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS scrapbook_page_media_page_idx ON scrapbook_page_media(page_id, created_at);
CREATE INDEX IF NOT EXISTS scrapbook_page_stickers_page_idx ON scrapbook_page_stickers(page_id, created_at);
CREATE INDEX IF NOT EXISTS scrapbook_page_texts_page_idx ON scrapbook_page_texts(page_id, created_at);
CREATE INDEX IF NOT EXISTS scrapbook_page_notes_page_idx ON scrapbook_page_notes(page_id, created_at);

CREATE TABLE IF NOT EXISTS coupons (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    issuer_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    recipient_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT,
    template_id TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'ACTIVE' CHECK (status IN ('ACTIVE', 'REDEEMED', 'EXPIRED')),
    expires_at TIMESTAMPTZ,
    redeemed_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS coupons_issuer_idx ON coupons(issuer_user_id, created_at DESC);
CREATE INDEX IF NOT EXISTS coupons_recipient_idx ON coupons(recipient_user_id, created_at DESC);

CREATE TABLE IF NOT EXISTS quest_templates (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('WEEKLY', 'MONTHLY')),
    target_count INTEGER NOT NULL CHECK (target_count > 0),
    event_type TEXT NOT NULL CHECK (event_type IN ('SCRAPBOOK_ENTRY_CREATED', 'COUPON_CREATED'))
);

-- period_start inclusive, period_end exclusive
CREATE TABLE IF NOT EXISTS quest_progress (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    relationship_id UUID NOT NULL REFERENCES relationships(id) ON DELETE CASCADE,
    quest_template_id TEXT NOT NULL REFERENCES quest_templates(id) ON DELETE CASCADE,
    period_start DATE NOT NULL,
    period_end DATE NOT NULL,
    progress_count INTEGER NOT NULL DEFAULT 0,
    started_at TIMESTAMPTZ,
    completed_at TIMESTAMPTZ,
    completed_by_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
    expired_at TIMESTAMPTZ,
    UNIQUE (relationship_id, quest_template_id, period_start, period_end)
);

INSERT INTO quest_templates (id, title, type, target_count, event_type) VALUES
    ('weekly-scrapbook', 'Make a scrapbook together', 'WEEKLY', 1, 'SCRAPBOOK_ENTRY_CREATED'),
    ('monthly-coupons', 'Gift each other 3 coupons', 'MONTHLY', 3, 'COUPON_CREATED')
ON CONFLICT (id) DO NOTHING;

-- One qualifying event: +1 (capped at target), started_at/completed_at set once.
-- Expired periods are never touched and yield no row.
CREATE OR REPLACE FUNCTION increment_quest_progress(
    p_relationship_id UUID,
    p_quest_template_id TEXT,
    p_period_start DATE,
    p_period_end DATE,
    p_target_count INTEGER,
    p_actor_user_id UUID,
    p_occurred_at TIMESTAMPTZ
) RETURNS SETOF quest_progress
LANGUAGE sql
AS $$
    INSERT INTO quest_progress AS qp (
        relationship_id, quest_template_id, period_start, period_end,
        progress_count, started_at, completed_at, completed_by_user_id
    ) VALUES (
        p_relationship_id, p_quest_template_id, p_period_start, p_period_end,
        LEAST(1, p_target_count),
        p_occurred_at,
        CASE WHEN 1 >= p_target_count THEN p_occurred_at END,
        CASE WHEN 1 >= p_target_count THEN p_actor_user_id END
    )
    ON CONFLICT (relationship_id, quest_template_id, period_start, period_end) DO UPDATE SET
        progress_count = LEAST(p_target_count, qp.progress_count + 1),
        started_at = COALESCE(qp.started_at, p_occurred_at),
        completed_at = COALESCE(
            qp.completed_at,
            CASE WHEN qp.progress_count + 1 >= p_target_count THEN p_occurred_at END
        ),
        completed_by_user_id = COALESCE(
            qp.completed_by_user_id,
            CASE WHEN qp.progress_count + 1 >= p_target_count THEN p_actor_user_id END
        )
    WHERE qp.expired_at IS NULL
    RETURNING qp.*;
$$;
"""
