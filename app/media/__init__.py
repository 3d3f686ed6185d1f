"""
Media app for encrypted file attachments.

This app provides:
- EncryptedFile model for client-encrypted blobs and their key material
- FileShare model for token-based, expiring, view-limited access
- Upload, share, authorize and delivery services
- Protected download endpoint returning decryption headers
"""
